"""ScriptKit - Python script runner and REPL

Runs Python code three ways:
- interactive REPL sessions with persistent history
- one-shot code snippets (-c)
- script files, optionally re-run whenever a file they used changes (--watch)

Every session starts from layered predef code, and every execution ends in
exactly one Outcome (Failure, ExceptionRaised, Success or Skipped).
"""

__version__ = "1.0.0"
