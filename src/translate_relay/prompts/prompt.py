# src/translate_relay/prompts/prompt.py

from string import Template

from pydantic import BaseModel


class Prompt(BaseModel):
    """A versioned ``string.Template`` prompt.

    ``inputs`` maps each ``$placeholder`` to a short description of what
    the caller must supply for it.
    """

    name: str
    version: str
    description: str
    inputs: dict[str, str]
    template: str

    class Config:
        extra = "forbid"

    @property
    def placeholders(self) -> set[str]:
        """Identifiers referenced as ``$name`` or ``${name}`` in the template."""
        found = set()
        for match in Template.pattern.finditer(self.template):
            name = match.group("named") or match.group("braced")
            if name:
                found.add(name)
        return found

    def render(self, **values: str) -> str:
        """Substitute ``$name`` placeholders.

        Raises:
            KeyError: If a declared input is missing from ``values``.
        """
        missing = [name for name in self.inputs if name not in values]
        if missing:
            raise KeyError(
                f"Prompt '{self.name}' missing inputs: {', '.join(sorted(missing))}"
            )
        return Template(self.template).substitute(values)
