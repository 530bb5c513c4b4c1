"""Bed management application.

Models, lifecycle services (beds, bed requests, ward transfers, cleaning,
reservation expiry), REST views and the real-time update channel.
"""
