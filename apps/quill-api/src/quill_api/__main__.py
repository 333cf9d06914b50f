from quill_api.cli import main

main()
