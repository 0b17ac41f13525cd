"""dbtpulse monitor — terminal rendering of run progress.

Modules
-------
renderer
    ``RunRenderer`` turns a ``RunExecution`` into Rich renderables (layered
    graph view or raw log tail) and drives a ``RunSession`` inside
    ``Rich.Live``.  It only reads run state; it never mutates it.
"""
