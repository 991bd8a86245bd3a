"""
Storegate Backend - Routes Package
===================================

Route Inventory:
    - health.py:  GET /health/live       (liveness + audit store status)
    - pages.py:   /page-not-found        (re-execution target for 404s)
                  /errorpage.htm         (re-execution target for faults)
                  /install               (redirect target before installation)

Business routes are mounted by the host application next to these; the
pipeline does not depend on them.
"""
