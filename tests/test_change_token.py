from layerconf.change_token import ChangeToken, on_change


def test_callbacks_fire_once():
    token = ChangeToken()
    calls = []
    token.register_change_callback(calls.append, "state")

    token.fire()
    token.fire()

    assert calls == ["state"]
    assert token.has_changed


def test_register_after_fire_runs_immediately():
    token = ChangeToken()
    token.fire()
    calls = []

    token.register_change_callback(calls.append, 1)

    assert calls == [1]


def test_disposed_registration_is_not_called():
    token = ChangeToken()
    calls = []
    registration = token.register_change_callback(calls.append)

    registration.dispose()
    token.fire()

    assert calls == []


def test_failing_callback_does_not_stop_others():
    token = ChangeToken()
    calls = []

    def boom(_state):
        raise RuntimeError("boom")

    token.register_change_callback(boom)
    token.register_change_callback(calls.append, "after")
    token.fire()

    assert calls == ["after"]


class TokenOwner:
    def __init__(self) -> None:
        self.token = ChangeToken()

    def get_token(self) -> ChangeToken:
        return self.token

    def change(self) -> None:
        previous, self.token = self.token, ChangeToken()
        previous.fire()


def test_on_change_resubscribes_to_each_new_token():
    owner = TokenOwner()
    calls = []
    on_change(owner.get_token, lambda: calls.append(len(calls)))

    owner.change()
    owner.change()
    owner.change()

    assert calls == [0, 1, 2]


def test_on_change_dispose_stops_notifications():
    owner = TokenOwner()
    calls = []
    subscription = on_change(owner.get_token, lambda: calls.append(1))

    owner.change()
    subscription.dispose()
    owner.change()

    assert calls == [1]
