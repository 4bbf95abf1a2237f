from crates_io_utils.main import main

main()
