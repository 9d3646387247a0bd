"""
Host-side engines.

An engine owns the current cluster index for a point set and answers viewport queries
against it. Rebuilds publish a new immutable index; readers never see a partial one.
"""
