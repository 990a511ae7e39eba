"""ScriptKit Engine

Core execution components:
- executor: In-process Python interpreter (predef, snippets, script files)
- predef: Predef layer composition
- scripts: Script argument grouping and @main entrypoint dispatch
- storage: Folder and in-memory storage backends
- repl: Interactive session and the `repl` binding
"""
