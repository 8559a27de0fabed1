import os, sqlite3, sys

DBS = [
    os.path.join(os.getcwd(), 'talentpool.db'),
    os.path.join(os.getcwd(), 'instance', 'talentpool.db'),
]

def inspect(db, batch_id=None):
    print(f"\n=== {db} ===")
    if not os.path.exists(db):
        print("missing")
        return
    conn = sqlite3.connect(db)
    cur = conn.cursor()
    def q(sql, params=()):
        cur.execute(sql, params)
        return cur.fetchall()
    try:
        print('batches (id, status, processed+failed/total):')
        for bid, status, p, f, t in q('select id,status,processed_files,failed_files,total_files '
                                      'from talent_pool_batches order by created_at desc limit 20'):
            flag = '' if p + f <= t else '  <-- counters exceed total'
            print(f'  {bid} {status} {p}+{f}/{t}{flag}')
        print('queue by status:', q('select status,count(*) from talent_pool_queue group by status'))
        print('candidates:', q('select count(*) from talent_pool_candidates')[0][0])
        print('duplicate emails:', q('select email,count(*) from talent_pool_candidates '
                                     'where email is not null group by email having count(*)>1'))
        if batch_id:
            print(f'items for batch {batch_id}:',
                  q('select id,status,dispatch_id,error_msg from talent_pool_queue '
                    'where batch_id=? order by created_at,seq', (batch_id,)))
    except sqlite3.Error as e:
        print('error:', e)
    finally:
        conn.close()

if __name__ == '__main__':
    bid = sys.argv[1] if len(sys.argv) > 1 else None
    for db in DBS:
        inspect(db, bid)
    print('\nDone.')
