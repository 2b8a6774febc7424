"""Núcleo del motor: modelos, contratos y almacenamiento.

English:
    Engine core: models, collaborator contracts and storage.
"""
