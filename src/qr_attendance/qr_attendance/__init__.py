"""QR session attendance package.

Organized by feature modules (sessions, attendance, qr, principals) with a
thin Flask controller layer over service/repository layers.
"""
