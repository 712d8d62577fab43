import sys

from ledger_sync.main import main

sys.exit(main())
