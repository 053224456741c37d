"""
Business services for Campus Transit.

- status.py: effective trip status from the timetable and the clock
- reconcile.py: reconciliation sweep persisting completed trips
- attendance.py: attendance log and absence → booking cancellation cascade
- notifications.py: trip-creation notices, broadcast fan-out, read state
- trips.py: trip creation, listing with enrichment, cancel and start
- directory.py: read-only lookups used for enrichment
- connection.py: WebSocket registry and live notification push
"""

__all__: list[str] = []
