from cigarstats.cli import main

raise SystemExit(main())
