# nebchat/__main__.py
from nebchat.app import main

raise SystemExit(main())
