"""auth/ -- Authentication package for LibraryHub.

Layer rule: auth/ imports only core/ + stdlib + third-party libraries.
It does NOT import from api/ or catalog/.
api/ imports from auth/, not the other way around.
"""
