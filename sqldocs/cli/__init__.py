# =============================================================================
# sqldocs/cli/__init__.py -- CLI Module Overview
# =============================================================================
#
# Command-line access to the documentation retrieval engine, run as
# `python -m sqldocs.cli <command>`.
#
#   index        Embed the reference corpus and persist a snapshot
#   search       Retrieve documentation relevant to a query
#   stats        Show retrieval, corpus and cache statistics
#   clear-cache  Delete persisted vector store snapshots
#
# Heavy imports (embedding SDKs) are deferred to the provider factories in
# sqldocs.main so `--help` and keyword-only searches start quickly.
# =============================================================================

"""CLI tools for sqldocs.

- ``python -m sqldocs.cli index`` -- embed the corpus and cache the vectors
- ``python -m sqldocs.cli search QUERY`` -- retrieve relevant documentation
- ``python -m sqldocs.cli stats`` -- show statistics
- ``python -m sqldocs.cli clear-cache`` -- delete cached snapshots
"""
