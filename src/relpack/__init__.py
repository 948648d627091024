"""relpack: content-addressed resolution of release package inputs."""
