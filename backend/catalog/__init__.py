"""
Dataset registry: YAML-configured point sets (`datasets/*/dataset.yaml` at repo root).
"""
