"""
Snippetbox: Middleware Package
==============================

What:  Cross-cutting concerns applied around the route handlers.

Chain (outermost first):
    RequestID → Logging → SecurityHeaders → RecoverPanic → Session → CSRF
    → Authenticate → route

    The first four apply to every request. RecoverPanic turns exceptions from
    the layers inside it into a 500 that still passes back through the
    security headers and the access log. Session, CSRF and Authenticate form
    the dynamic chain and step aside for /ping and /static/*.

    Failures in the outer three are caught by the Exception handler
    registered in snippetbox.main, which Starlette runs outside all of them.
"""
