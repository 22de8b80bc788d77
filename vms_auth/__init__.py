"""
VMS Auth: client-side authentication context for the visitor
management system (login, signup, logout, session restoration and role
verification for the admin, employee and guard roles), on top of Supabase.
"""

__version__ = "0.1.0"
