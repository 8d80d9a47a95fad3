from rewrite_proxy.main import run

run()
