"""ScriptKit - Start Script

Runs ScriptKit from a source checkout without installing it:

    python start.py script.py arg1 --flag value
    python start.py              # REPL
"""

import os
import sys

from scriptkit.main import main

if __name__ == "__main__":
    if os.environ.get("LOG_LEVEL", "").upper() == "DEBUG":
        home = os.environ.get("SCRIPTKIT_HOME")
        print("Starting ScriptKit", file=sys.stderr)
        print(f"  SCRIPTKIT_HOME: {home or 'NOT SET (using ~/.scriptkit)'}", file=sys.stderr)
        print(f"  REMOTE_LOG_URL: {'***configured***' if os.environ.get('SCRIPTKIT_REMOTE_LOG_URL') else 'NOT SET'}",
              file=sys.stderr)

    main()
