from corepacer.cli import main

raise SystemExit(main())
