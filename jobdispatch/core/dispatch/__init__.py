# jobdispatch/core/dispatch/__init__.py
"""
Dispatch Layer: turns a confirmed booking into a driver notification.

This package holds the enrichment rules and the pipeline that runs them:
- ``zones`` - regulatory zone classification by postcode prefix
- ``impact`` - weather / traffic scoring and advice
- ``route_cost`` - baseline vs. optimized route advice
- ``crew`` - crew size recommendation
- ``fallbacks`` - substitute data when a provider is unavailable
- ``composer`` - priority, title and message text
- ``orchestrator`` - the ``dispatch()`` entry point

Everything except ``orchestrator`` is pure and never touches I/O.
"""
