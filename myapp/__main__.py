from myapp.server import main

main()
