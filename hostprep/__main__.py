from hostprep.main import main

main()
