"""
Classes CSS et attributs du format de livre Bloom.
"""

# Structure des pages
PAGE_CLASS = "bloom-page"
PAGE_LABEL_CLASS = "pageLabel"
PAGE_NUMBER_ATTR = "data-page-number"
PAGE_LINEAGE_ATTR = "data-pagelineage"

# Bloc de métadonnées du livre
DATA_DIV_ID = "bloomDataDiv"
DATA_BOOK_ATTR = "data-book"
# Images du data div reconnues par leur seule clé (ni src, ni <img>)
DATA_DIV_IMAGES_WITHOUT_SRC = ("licenseImage",)

# Contenu des pages
TRANSLATION_GROUP_CLASS = "bloom-translationGroup"
EDITABLE_CLASS = "bloom-editable"
IMAGE_CONTAINER_CLASS = "bloom-imageContainer"
IMAGE_DESCRIPTION_CLASS = "bloom-imageDescription"
VIDEO_CONTAINER_CLASS = "bloom-videoContainer"
WIDGET_CONTAINER_CLASS = "bloom-widgetContainer"
NO_VIDEO_SELECTED_CLASS = "bloom-noVideoSelected"
PLACEHOLDER_IMAGE = "placeHolder.png"

# Quiz
CORRECT_ANSWER_CLASS = "correct-answer"
QUIZ_CHOICE_CLASS = "checkbox-and-textbox-choice"

# Langue du modèle de bloom-editable (jamais exportée)
TEMPLATE_LANG = "z"

# Audio
AUDIO_SENTENCE_CLASS = "audio-sentence"
HIGHLIGHT_SEGMENT_CLASS = "bloom-highlightSegment"
POST_AUDIO_SPLIT_CLASS = "bloom-postAudioSplit"
AUDIO_MODE_ATTR = "data-audiorecordingmode"
AUDIO_END_TIMES_ATTR = "data-audiorecordingendtimes"
AUDIO_DURATION_ATTR = "data-duration"
AUDIO_MD5_ATTR = "recordingmd5"
AUDIO_MODE_TEXTBOX = "TextBox"
AUDIO_MODE_SENTENCE = "Sentence"
