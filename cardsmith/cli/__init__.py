# =============================================================================
# cardsmith/cli/__init__.py - CLI Module Overview
# =============================================================================
#
# Command-line entry points for cardsmith. Run with `python -m cardsmith.cli`.
#
# Subcommands (all in sync.py):
#
#   sync     - Process every source in config/sources.yaml (or the ones
#              named with --source) and upsert the questions into SQLite.
#   process  - Run one URL or local markdown file through the pipeline.
#   chunk    - Show how the semantic chunker splits a local file. No LLM.
#   sources  - List the configured sources.
#   stats    - Count stored questions, optionally per source.
#
# Architecture Notes:
#   - argparse only; no Click/Typer.
#   - Provider construction is deferred into the handlers so `chunk` and
#     `sources` work without any API key configured.
# =============================================================================

"""Command-line tools for cardsmith.

- ``python -m cardsmith.cli sync`` - sync all configured sources.
- ``python -m cardsmith.cli process <url-or-path>`` - process one document.
- ``python -m cardsmith.cli chunk <path>`` - preview chunk boundaries.
"""
