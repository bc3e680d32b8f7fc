"""
Device side of n-dizi: the local record store, the state containers that
sit on top of it, and the client that syncs it with the cloud API.
"""
