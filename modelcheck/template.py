import requests
import requests_file

from jinja2 import BaseLoader, ChoiceLoader, DictLoader, Environment, TemplateNotFound

BUILTIN_TEMPLATES = {
    "errors.txt": (
        "{% if errors %}{{ header }}\n"
        "{% for message in full_messages %}  - {{ message }}\n{% endfor %}"
        "{% endif %}"
    ),
    "errors.html": (
        "{% if errors %}"
        '<div id="error_explanation">\n'
        "  <h2>{{ header }}</h2>\n"
        "  <p>{{ body }}</p>\n"
        "  <ul>\n"
        "{% for message in full_messages %}    <li>{{ message }}</li>\n{% endfor %}"
        "  </ul>\n"
        "</div>\n"
        "{% endif %}"
    ),
    "report.txt": (
        "{% for item in results %}"
        "{{ item.label }}: {{ 'valid' if item.valid else 'invalid' }}\n"
        "{% for message in item.full_messages %}  - {{ message }}\n{% endfor %}"
        "{% endfor %}"
        "{{ valid }}/{{ total }} valid\n"
    ),
}


class URILoader(BaseLoader):
    def __init__(self):
        self.session = requests.Session()
        self.session.mount("file://", requests_file.FileAdapter())

    def get_source(self, environment, template):
        if "://" not in template:
            raise TemplateNotFound(template)
        r = self.session.get(template)
        if not r.status_code == requests.codes.ok:
            raise TemplateNotFound(template)
        return (r.text, template, lambda: True)


def get_env():
    return Environment(
        loader=ChoiceLoader([DictLoader(BUILTIN_TEMPLATES), URILoader()]),
        autoescape=lambda name: bool(name) and name.endswith(".html"),
        keep_trailing_newline=True,
    )
