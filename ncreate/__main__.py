from ncreate.cli import main

main()
