from githours.cli import main

raise SystemExit(main())
