"""
Chat Gateway - passerelle HTTP entre le client de chat et ses upstreams.

Relais streaming, cache média adressé par contenu, agrégateur de recherche web.
"""

__version__ = "1.0.0"
