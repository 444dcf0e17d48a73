# Services package init
"""
Portfolio Backend — Services Layer
====================================

Service Inventory:
    - ContactInfoStore:   the singleton record, its writes and resets
    - HistoryLog:         append-only snapshots, newest-first views
    - contact_info_merge: payload validation and the merge policy
    - auth_service:       Actor and bearer-token verification

Services raise PortfolioError subclasses; the HTTP mapping lives in main.py.
"""
