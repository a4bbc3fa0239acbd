import logging

from workbench.application.services.prompt_renderer import DEFAULT_AI_PROMPT, PromptRenderer


class TestPromptRenderer:
    def test_default_template(self):
        messages = PromptRenderer().render_messages("fix login", "users get 500")

        assert messages[0] == {"role": "system", "content": DEFAULT_AI_PROMPT}
        assert messages[1] == {"role": "user", "content": "Title: fix login\nDescription: users get 500"}

    def test_custom_prompt_can_reference_title(self):
        renderer = PromptRenderer(
            prompt="Improve the ticket '{{ title }}'",
            message_template=[{"role": "user", "content": "{{ prompt }}\n\n{{ title_and_description }}"}],
        )

        messages = renderer.render_messages("disk full", "on db-1")

        assert messages == [{"role": "user", "content": "Improve the ticket 'disk full'\n\ndisk full\n\non db-1"}]

    def test_unknown_variable_renders_empty_and_warns(self, caplog):
        caplog.set_level(logging.WARNING, logger="workbench.application.services.prompt_renderer")
        renderer = PromptRenderer(message_template=[{"role": "user", "content": "[{{ missing }}]"}])

        assert renderer.render_messages("t", "d")[0]["content"] == "[]"
        assert any("missing" in r.getMessage() for r in caplog.records)

    def test_no_html_escaping(self):
        messages = PromptRenderer(message_template=[{"role": "user", "content": "{{ title }}"}]).render_messages("a < b & c", "")
        assert messages[0]["content"] == "a < b & c"
