import json

import pytest

from cvforge.llm_provider import GenerationResult
from cvforge.state import Profile, ProfileEntry


class FakeEngine:
    """Replays queued responses; dicts are sent back as JSON, exceptions are raised."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.release = None  # set to an asyncio.Event to hold calls until released

    async def generate(self, prompt, attachment=None, output_schema=None):
        self.calls.append({"prompt": prompt, "attachment": attachment, "output_schema": output_schema})
        item = self.responses.pop(0)
        if self.release is not None:
            await self.release.wait()
        if isinstance(item, Exception):
            raise item
        if isinstance(item, (dict, list)):
            item = json.dumps(item)
        return GenerationResult(text=item)


@pytest.fixture
def make_engine():
    return FakeEngine


@pytest.fixture
def profile():
    return Profile(
        full_name="Jan Kowalski",
        birth_date="16/10/1985",
        photo="data:image/png;base64,AAAA",
        entries=[
            ProfileEntry(id=1, position="Magazynier", company="Amazon", start_date="2020-01",
                         end_date="2022-12", description="Kompletowanie zamówień."),
            ProfileEntry(id=2, position="Kierowca wózka", company="DHL", start_date="2018-03",
                         end_date="2019-12", description="Obsługa wózka widłowego."),
            ProfileEntry(id=3, position="Pakowacz", company="Zalando", start_date="2016-05",
                         end_date="2018-02", description="Pakowanie paczek."),
        ],
    )
