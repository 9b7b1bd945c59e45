"""
Snippetbox: Routes Package
==========================

Route inventory:
    health.py    GET  /ping
    pages.py     GET  /, /about
    snippets.py  GET  /snippet/view/{id}, GET/POST /snippet/create
    users.py     GET/POST /user/signup, /user/login; POST /user/logout
    account.py   GET  /account/view; GET/POST /account/password/update

Handlers stay thin: decode the form, apply field rules, call a service,
render or redirect. Business rules live in the services.
"""
