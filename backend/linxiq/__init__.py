"""
LinxIQ assessment lifecycle service.
"""
