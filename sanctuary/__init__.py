"""
Sadaya Sanctuary business hub API.

Directory, proposals, invoices, support, classes, operations, chat and
waivers for a wellness-retreat operator, served as a FastAPI JSON service.
"""
