"""
All the data structures used across the client.

The structures are purely data-manipulative and computational.
No external calls or any i/o activities are done here.
"""
