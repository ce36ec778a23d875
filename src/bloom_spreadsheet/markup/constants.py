"""
Constantes du balisage Bloom utilisées par le parseur de formatage.
"""

# Marqueur de découpage audio inséré par l'outil d'enregistrement
SPLIT_MARKER_CLASS = "bloom-audio-split-marker"
SPLIT_MARKER_HTML = f'<span class="{SPLIT_MARKER_CLASS}">\u200b</span>'
# Représentation du marqueur dans le tableur
SPLIT_MARKER_TEXT = "|"

# Saut de ligne forcé (shift-entrée), toujours suivi de U+FEFF dans Bloom
LINEBREAK_CLASS = "bloom-linebreak"
LINEBREAK_HTML = f'<span class="{LINEBREAK_CLASS}"></span>'
LINEBREAK_FOLLOWER = "\ufeff"

# Balises de formatage reconnues
BOLD_TAGS = {"strong", "b"}
ITALIC_TAGS = {"em", "i"}
UNDERLINE_TAGS = {"u"}
SUPERSCRIPT_TAGS = {"sup"}

# Balises traitées comme des paragraphes
BLOCK_TAGS = {"p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "li"}
