from fontpack.cli import main

raise SystemExit(main())
