"""
Surface HTTP de la passerelle.
"""
