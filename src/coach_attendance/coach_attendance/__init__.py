"""Coach attendance package.

Organized by feature modules (attendance, sessions, players, coaches, ...)
with a thin Flask controller layer over service/repository layers.
"""
