from .document import Document
