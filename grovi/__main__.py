from grovi.main import main

main()
