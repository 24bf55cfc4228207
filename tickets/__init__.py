"""tickets/ -- Ticket file ingest and in-memory registry for TicketDesk.

Layer rule: tickets/ imports only stdlib. It does NOT import from api/ or auth/.
"""
