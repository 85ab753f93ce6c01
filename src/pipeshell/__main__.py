from pipeshell.shell import main

main()
