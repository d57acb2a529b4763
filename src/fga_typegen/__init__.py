"""
fga-typegen: OpenFGA authorization model → typed source module

Compiles a relationship-based authorization model into a self-contained
TypeScript or Python module: object-type and relation constants, a
discriminated union of tuple keys, and helpers that format, parse, build
and validate tuples against the model.

ARCHITECTURAL GUARANTEE:
------------------------
The compiler core (parser, sanitizer, classifier, synthesizer, backends)
performs ZERO I/O:
    - No network access
    - No file reads or writes
    - No global state between runs

Fetching, configuration and file writing live in client.py, settings.py
and cli.py, which call into the core and never the other way around.
"""

__version__ = "0.1.0"
