from __future__ import annotations

import logging
import socket
from pathlib import Path

import pytest

from agent_zero_installer.services.environment_service import (
    EnvironmentService,
    is_port_available,
)
from installer_core.config import RuntimeConfig
from installer_core.errors import (
    EnvironmentCheckError,
    InsufficientDiskSpaceError,
    PortInUseError,
)


def _service(
    config: RuntimeConfig,
    runner,
    tmp_path: Path,
    *,
    which=lambda name: True,
    port_available=lambda port: True,
    disk_free_mib=lambda path: 5 * 1024,
    os_release: str | None = 'NAME="Linux Mint"\nID=linuxmint\nID_LIKE="ubuntu debian"\n',
) -> EnvironmentService:
    os_release_path = tmp_path / "os-release"
    if os_release is not None:
        os_release_path.write_text(os_release, encoding="utf-8")
    return EnvironmentService(
        config=config,
        home=tmp_path,
        run=runner,
        which=which,
        port_available=port_available,
        disk_free_mib=disk_free_mib,
        os_release_path=os_release_path,
    )


def test_validate_passes_on_supported_host(runtime_config, fake_runner, tmp_path: Path) -> None:
    fake_runner.respond(["python3", "--version"], stdout="Python 3.12.3\n")
    service = _service(runtime_config, fake_runner, tmp_path)

    service.validate()

    assert fake_runner.commands() == [["python3", "--version"]]


def test_missing_python_is_fatal_with_install_hint(runtime_config, fake_runner, tmp_path: Path) -> None:
    service = _service(runtime_config, fake_runner, tmp_path, which=lambda name: False)

    with pytest.raises(EnvironmentCheckError, match="sudo apt install python3 python3-venv"):
        service.validate()
    assert fake_runner.calls == []


def test_old_python_is_fatal(runtime_config, fake_runner, tmp_path: Path) -> None:
    fake_runner.respond(["python3", "--version"], stdout="Python 3.8.10\n")
    service = _service(runtime_config, fake_runner, tmp_path)

    with pytest.raises(EnvironmentCheckError, match="Python 3.10\\+ required, found 3.8.10"):
        service.check_python()


def test_python_version_boundary_is_accepted(runtime_config, fake_runner, tmp_path: Path) -> None:
    fake_runner.respond(["python3", "--version"], stdout="Python 3.10.0\n")
    assert _service(runtime_config, fake_runner, tmp_path).check_python() == (3, 10, 0)


def test_unrecognized_os_only_warns(runtime_config, fake_runner, tmp_path: Path, caplog) -> None:
    logger = logging.getLogger("agent_zero_installer.environment")
    logger.addHandler(caplog.handler)
    service = _service(runtime_config, fake_runner, tmp_path, os_release='NAME="Fedora Linux"\nID=fedora\n')

    try:
        with caplog.at_level(logging.WARNING, logger="agent_zero_installer.environment"):
            assert service.check_os_family() is False
    finally:
        logger.removeHandler(caplog.handler)
    assert "Not Ubuntu/Mint" in caplog.text


def test_missing_os_release_is_not_warned(runtime_config, fake_runner, tmp_path: Path) -> None:
    service = _service(runtime_config, fake_runner, tmp_path, os_release=None)
    assert service.check_os_family() is True


def test_bound_gui_port_is_fatal_with_override_hint(runtime_config, fake_runner, tmp_path: Path) -> None:
    fake_runner.respond(["python3", "--version"], stdout="Python 3.11.4\n")
    service = _service(
        runtime_config,
        fake_runner,
        tmp_path,
        port_available=lambda port: port != runtime_config.gui_port,
    )

    with pytest.raises(PortInUseError) as raised:
        service.validate()
    assert raised.value.port == 7860
    assert "GUI_PORT=8080" in str(raised.value)


def test_bound_api_port_names_api_variable(runtime_config, fake_runner, tmp_path: Path) -> None:
    service = _service(
        runtime_config,
        fake_runner,
        tmp_path,
        port_available=lambda port: port != runtime_config.api_port,
    )

    with pytest.raises(PortInUseError, match="API_PORT="):
        service.check_ports()


def test_low_disk_space_is_fatal(runtime_config, fake_runner, tmp_path: Path) -> None:
    service = _service(runtime_config, fake_runner, tmp_path, disk_free_mib=lambda path: 2047)

    with pytest.raises(InsufficientDiskSpaceError, match="Need 2GB free disk space"):
        service.check_disk_space()


def test_disk_space_threshold_is_inclusive(runtime_config, fake_runner, tmp_path: Path) -> None:
    service = _service(runtime_config, fake_runner, tmp_path, disk_free_mib=lambda path: 2048)
    assert service.check_disk_space() == 2048


def test_is_port_available_detects_listening_socket() -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener:
        listener.bind(("127.0.0.1", 0))
        listener.listen(1)
        port = listener.getsockname()[1]
        assert is_port_available(port) is False


def test_is_port_available_detects_ipv6_only_listener() -> None:
    try:
        listener = socket.socket(socket.AF_INET6, socket.SOCK_STREAM)
    except OSError:
        pytest.skip("IPv6 sockets unavailable")
    with listener:
        listener.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 1)
        try:
            listener.bind(("::1", 0))
        except OSError:
            pytest.skip("IPv6 loopback unavailable")
        listener.listen(1)
        port = listener.getsockname()[1]
        assert is_port_available(port) is False


def test_free_port_is_available() -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as reserved:
        reserved.bind(("127.0.0.1", 0))
        port = reserved.getsockname()[1]
    assert is_port_available(port) is True
