from cheat_check.cli import main

raise SystemExit(main())
