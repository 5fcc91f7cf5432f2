"""Prompt templates for the image model.

These templates use {placeholder} syntax for string formatting.
"""

# =============================================================================
# Front View
# =============================================================================

FRONT_VIEW_PROMPT = """\
Edit the attached photo so the person has this haircut: {haircut}.

Keep the face, skin tone, expression, clothing and background exactly as they \
are. Change only the hair. Show the head from the front, well lit and in sharp \
focus, so a barber can use the image as a reference.\
"""

# =============================================================================
# Side and Back Views
# =============================================================================

SIDE_AND_BACK_VIEWS_PROMPT = """\
Using the attached photo of the person, generate two separate images of them \
with this haircut: {haircut}.

1. A side profile view of the head.
2. A view of the back of the head.

Keep the person's identity and hair colour consistent with the photo. Show the \
fade, length and texture clearly in both images so a barber can use them as \
references. Return exactly two images, side view first.\
"""


def front_view(haircut: str) -> str:
    return FRONT_VIEW_PROMPT.format(haircut=haircut)


def side_and_back_views(haircut: str) -> str:
    return SIDE_AND_BACK_VIEWS_PROMPT.format(haircut=haircut)
