from __future__ import annotations

import logging
import ssl
from typing import Any

import paho.mqtt.client as mqtt

from health_tap.config import MqttConfig

ONLINE = "online"
OFFLINE = "offline"


class SnapshotPublisher:
    """Sends health snapshots to ``base_topic``.

    Availability lives on ``<base_topic>/status`` as a retained payload,
    backed by a last will so the broker marks the host offline on a drop.
    """

    def __init__(self, config: MqttConfig) -> None:
        self.config = config
        self.status_topic = f"{config.base_topic}/status"
        self.logger = logging.getLogger(self.__class__.__name__)
        self._connected = False

        client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=config.client_id,
            protocol=mqtt.MQTTv311,
        )
        client.on_connect = self._handle_connect
        client.on_disconnect = self._handle_disconnect
        if config.username:
            client.username_pw_set(config.username, config.password)
        if config.tls_enabled:
            client.tls_set(ca_certs=config.ca_cert, cert_reqs=ssl.CERT_REQUIRED)
        client.will_set(self.status_topic, payload=OFFLINE, qos=1, retain=True)
        client.reconnect_delay_set(min_delay=1, max_delay=120)
        self.client = client

    @property
    def connected(self) -> bool:
        return self._connected

    def _handle_connect(
        self, client: Any, userdata: Any, flags: Any, reason_code: Any, properties: Any = None
    ) -> None:
        self._connected = reason_code == 0
        if not self._connected:
            self.logger.error("MQTT broker refused connection: %s", reason_code)
            return
        self.logger.info("Connected to MQTT broker %s:%s", self.config.host, self.config.port)
        self._send(self.status_topic, ONLINE, qos=1, retain=True)

    def _handle_disconnect(
        self, client: Any, userdata: Any, flags: Any, reason_code: Any, properties: Any = None
    ) -> None:
        self._connected = False
        if reason_code != 0:
            self.logger.warning("Lost MQTT broker connection (%s), reconnecting.", reason_code)

    def _send(self, topic: str, payload: str, qos: int, retain: bool) -> bool:
        result = self.client.publish(topic, payload=payload, qos=qos, retain=retain)
        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            self.logger.error("Publish to %s failed, error code: %s", topic, result.rc)
            return False
        return True

    def connect(self) -> None:
        self.logger.info("Connecting to MQTT broker %s:%s", self.config.host, self.config.port)
        self.client.connect(self.config.host, self.config.port, keepalive=self.config.keepalive)
        # Background network thread; reconnects on its own.
        self.client.loop_start()

    def disconnect(self) -> None:
        if self._connected:
            self._send(self.status_topic, OFFLINE, qos=1, retain=True)
        self.client.loop_stop()
        self.client.disconnect()

    def publish_status(self, status: str) -> bool:
        self.logger.info("Publishing status '%s' to %s", status, self.status_topic)
        return self._send(self.status_topic, status, qos=1, retain=True)

    def publish(self, payload: str) -> bool:
        if not self._connected:
            self.logger.warning("Not connected to MQTT broker, snapshot may be queued")
        return self._send(
            self.config.base_topic, payload, qos=self.config.qos, retain=self.config.retain
        )
