from clientpack.stylesheet.model import StyleDeclaration
from clientpack.stylesheet.parser import parse_declarations, rewrite_declarations

__all__ = ["StyleDeclaration", "parse_declarations", "rewrite_declarations"]
