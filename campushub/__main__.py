from campushub.app import main

main()
