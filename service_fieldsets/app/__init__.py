"""
Application modules for the fieldsets service.
"""
