"""
Document adapters.

Adapters read configuration documents into resolved trees and write
trees back as documents.
"""

from diconf.adapters.yaml_adapter import DiconfDumper, DiconfLoader, YamlAdapter

__all__ = ["DiconfDumper", "DiconfLoader", "YamlAdapter"]
