from webgen.cli import main

raise SystemExit(main())
