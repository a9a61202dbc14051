"""
Core Package.

Contains the compiler pipeline:
- Tree model and walker
- Base parser, Stage 1 (extension) and Stage 2 (markup) transpilers
- Transform registry and runner
- Code generator and engine
"""
