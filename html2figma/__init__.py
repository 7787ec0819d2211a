"""html2figma – renderad webbsida → IR → lagerbaserad designscen."""

__version__ = "0.4.0"
