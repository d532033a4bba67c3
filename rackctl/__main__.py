from rackctl.cli import main

raise SystemExit(main())
