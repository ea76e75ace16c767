from cargo_coverage.cli import main

main()
