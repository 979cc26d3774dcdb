"""Renderer - assembles Fragments into the final script text."""

from typing import Mapping, Optional, Sequence

from jinja2 import Environment, StrictUndefined

from twl.compiler.spec import Fragment

BANNER_WIDTH = 60

# Comment rules around the script title, then an echo so the running script
# reports which tweak it is applying.
DEFAULT_BANNER = (
    "{{ comment }} {{ '' | rule }}\n"
    "{{ comment }} {{ title | rule }}\n"
    "{{ comment }} {{ '' | rule }}\n"
    "echo --- {{ title }}\n"
    "{{ body }}\n"
    "{{ comment }} {{ '' | rule }}"
)


def rule(text: str, width: int = BANNER_WIDTH) -> str:
    """Center `text` in a line of dashes."""
    return f"{text:-^{width}}"


def get_banner_env() -> Environment:
    """Create the Jinja2 Environment used for fragment banners."""
    env = Environment(undefined=StrictUndefined, autoescape=False)
    env.filters["rule"] = rule
    return env


def render_globals(text: str, variables: Mapping[str, str]) -> str:
    """Substitute global variables in start/end code.

    Only the exact spellings `{{ $name }}` of the given variables are
    replaced. Any other brace expression stays literal text.
    """
    for name, value in variables.items():
        text = text.replace(f"{{{{ ${name} }}}}", value)
    return text


class Renderer:
    """Renders Fragments to script text.

    Fragment texts are never altered: they are joined in order, one blank
    line apart, between the header and the footer. Line endings are applied
    once over the whole result.
    """

    def __init__(
        self,
        comment: Optional[str] = None,
        line_ending: str = "\n",
        banner_template: str = DEFAULT_BANNER,
    ):
        """Initialize renderer.

        Args:
            comment: Line comment prefix of the target language. When given,
                each fragment is wrapped in a banner naming its script.
            line_ending: Line separator of the output.
            banner_template: Jinja2 template for banners. Receives `comment`,
                `title`, `name` and `body`.
        """
        self.comment = comment
        self.line_ending = line_ending
        self._banner = get_banner_env().from_string(banner_template) if comment else None

    def render(
        self, fragments: Sequence[Fragment], header: str = "", footer: str = ""
    ) -> str:
        """Render fragments to executable text.

        Args:
            fragments: Fragments in emission order.
            header: Text placed first, e.g. an interpreter marker.
            footer: Text placed last.

        Returns:
            The complete script, ending with a line break.
        """
        parts = []
        if header.strip():
            parts.append(header.strip("\r\n"))
        parts.extend(self._render_fragment(fragment) for fragment in fragments)
        if footer.strip():
            parts.append(footer.strip("\r\n"))

        text = "\n\n".join(parts) + "\n"
        if self.line_ending != "\n":
            text = text.replace("\r\n", "\n").replace("\n", self.line_ending)
        return text

    def _render_fragment(self, fragment: Fragment) -> str:
        if self._banner is None:
            return fragment.text
        return self._banner.render(
            comment=self.comment,
            title=fragment.title,
            name=fragment.name,
            body=fragment.text,
        )


def assemble(
    fragments: Sequence[Fragment],
    header: str = "",
    footer: str = "",
    comment: Optional[str] = None,
    line_ending: str = "\n",
) -> str:
    """Render fragments with a one-off Renderer."""
    return Renderer(comment=comment, line_ending=line_ending).render(fragments, header, footer)
