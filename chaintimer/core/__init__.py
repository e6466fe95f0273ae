"""
Chain timer engine: data model, reducer, reconciliation and the session
that serializes every state change.
"""
