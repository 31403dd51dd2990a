"""
Application modules for the vaccine QR tracker (storage, services, UI helpers).
"""
