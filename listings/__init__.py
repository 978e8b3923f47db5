"""
Book listings: create, browse, edit, delete and like.
"""
