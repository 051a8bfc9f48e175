from alphasim.cli import main

raise SystemExit(main())
