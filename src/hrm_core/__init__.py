"""HRM core package.

Organized by feature modules (attendance, leave, payroll, salary, ...) with a
thin Flask controller layer over service/repository layers. The services own the
attendance, leave and payroll invariants; everything around them is plumbing.
"""
