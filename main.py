"""Example usage of simple_ssh package."""

from simple_ssh import connect_with_key_file


def main():
    """Demonstrate basic Client usage."""
    print("Simple SSH Example")

    # Empty username and key path: current user and ~/.ssh/id_rsa
    with connect_with_key_file("192.168.1.10", "", "") as client:
        print(client.exec("ls -la").decode())

        stdout, stderr = client.exec_with_output_streams("uname -a; echo warn >&2")
        print(f"Stdout: {stdout.decode()}")
        if stderr:
            print(f"Stderr: {stderr.decode()}")

        client.upload("main.py", "/tmp/main.py")
        print(client.read_all("/tmp/main.py").decode()[:80])

    print("Connection closed automatically")


if __name__ == "__main__":
    main()
