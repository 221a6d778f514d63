"""Live-reload client script and HTML injection.

The snippet subscribes to the change stream and reloads the page a short,
debounced delay after the most recent ``change`` event: each new event
cancels the pending reload timer and starts it again.
"""

import re

from kida import Environment

RELOAD_TEMPLATE = """
<script>(() => {
  let t;
  new EventSource("{{ events_path }}").addEventListener("change", e => {
    console.warn("CHANGE:", e.data);
    if (t != null) clearTimeout(t);
    t = setTimeout(() => location.reload(), {{ delay_ms }});
  });
})()</script>
"""

_BODY_CLOSE = re.compile(r"</body>", re.IGNORECASE)


def render_reload_script(events_path: str = "/_events", delay_ms: int = 200) -> str:
    """Render the reload ``<script>`` tag, whitespace collapsed to one line."""
    env = Environment(autoescape=False)
    template = env.from_string(RELOAD_TEMPLATE)
    html = template.render({"events_path": events_path, "delay_ms": delay_ms})
    return re.sub(r"\s+", " ", html).strip()


def inject_script(html: str, snippet: str) -> str:
    """Insert *snippet* before the first ``</body>`` (any case).

    Documents without a closing body tag get the snippet appended.
    """
    injected, count = _BODY_CLOSE.subn(lambda m: snippet + m[0], html, count=1)
    if count:
        return injected
    return html + snippet
