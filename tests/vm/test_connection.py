#!/usr/bin/env python3
"""Manual check of simple_ssh against a live host."""

import os
import tempfile

from simple_ssh import SSHConnectionError, connect_with_key_file, connect_with_ssh_agent


def main():
    print("Testing Simple SSH Library")
    print("=" * 40)

    host = os.environ.get("SIMPLE_SSH_HOST", "192.168.215.3")
    user = os.environ.get("SIMPLE_SSH_USER", "debian")

    try:
        print("Attempting to connect...")
        if os.environ.get("SSH_AUTH_SOCK"):
            client = connect_with_ssh_agent(host, user, timeout=10)
        else:
            client = connect_with_key_file(host, user, "/root/.ssh/debian_vm_key", timeout=10)

        with client:
            print(f"✓ Connected: {client}")

            output = client.exec("uname -a")
            print(f"uname: {output.decode().strip()}")

            stdout, stderr = client.exec_with_output_streams("whoami; echo to-stderr >&2")
            print(f"whoami: {stdout.decode().strip()} (stderr: {stderr.decode().strip()})")

            with tempfile.TemporaryDirectory() as tmp:
                local = os.path.join(tmp, "payload.bin")
                back = os.path.join(tmp, "back.bin")
                with open(local, "wb") as f:
                    f.write(os.urandom(1 << 20))

                client.upload(local, "/tmp/simple_ssh_payload.bin")
                client.download("/tmp/simple_ssh_payload.bin", back)
                with open(local, "rb") as a, open(back, "rb") as b:
                    print(f"round trip identical: {a.read() == b.read()}")

            client.exec("rm -f /tmp/simple_ssh_payload.bin")

    except SSHConnectionError as e:
        print(f"✗ Connection failed: {e}")
        return False

    print("✓ Connection test completed")
    return True


if __name__ == "__main__":
    success = main()
    exit(0 if success else 1)
