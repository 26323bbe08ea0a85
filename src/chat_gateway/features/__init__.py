"""
Features de la passerelle: cache média et recherche web.
"""
