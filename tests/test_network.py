from dew_point_fan import network


def test_skips_loopback(monkeypatch):
    monkeypatch.setattr(network, "ipv4_addresses", lambda: ["127.0.1.1", "192.168.1.5", "10.0.0.2"])
    assert network.find_ip_address() == "192.168.1.5"


def test_only_loopback(monkeypatch):
    monkeypatch.setattr(network, "ipv4_addresses", lambda: ["127.0.0.1"])
    assert network.find_ip_address() == ""
