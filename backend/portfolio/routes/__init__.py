# Routes package init
"""
Portfolio Backend — API Routes Package
========================================

Route Inventory:
    - contact_info.py: GET  /api/contact-info                 (public)
                       GET  /api/admin/contact-info           (authenticated)
                       POST /api/admin/contact-info           (canEditProfile)
                       PUT  /api/admin/contact-info           (canEditProfile)
                       DELETE /api/admin/contact-info         (admin)
                       GET  /api/admin/contact-info/history   (canEditProfile)
    - health.py:       GET  /health
    - dependencies.py: store and Actor dependencies shared by the routes

Routes stay thin: read the request, call a service, shape the envelope.
"""
